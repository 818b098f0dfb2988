import unittest

from tinydi import Container, Lifetime


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_register_transient_returns_new_instances(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.TRANSIENT)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_resolve_transient_within_one_scope_returns_new_instances(self):
        class A: ...

        self.cont.register_transient(A)
        scope = self.cont.create_scope()
        instances = [scope.resolve(A) for _ in range(5)]
        assert len({id(i) for i in instances}) == 5

    def test_resolve_register_singleton_returns_same_instance(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.SINGLETON)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_resolve_singleton_is_shared_across_scopes(self):
        class A: ...

        self.cont.register_singleton(A)
        s1 = self.cont.create_scope()
        s2 = self.cont.create_scope()
        assert s1.resolve(A) is s2.resolve(A)

    def test_resolve_singleton_is_shared_with_descendant_containers(self):
        class A: ...

        self.cont.register_singleton(A)
        child = self.cont.customize()
        grandchild = child.customize()

        a = self.cont.resolve(A)
        assert child.resolve(A) is a
        assert grandchild.create_scope().resolve(A) is a

    def test_resolve_singleton_factory_returning_none_is_built_once(self):
        calls = []

        def factory(_):
            calls.append(1)

        self.cont.register_singleton("nothing", factory=factory)
        assert self.cont.resolve("nothing") is None
        assert self.cont.resolve("nothing") is None
        assert len(calls) == 1

    def test_resolve_per_scope_returns_same_instance_within_scope(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.PER_SCOPE)
        scope = self.cont.create_scope()
        assert scope.resolve(A) is scope.resolve(A)

    def test_resolve_per_scope_returns_new_instance_per_scope(self):
        class A: ...

        self.cont.register_per_scope(A)
        a1 = self.cont.create_scope().resolve(A)
        a2 = self.cont.create_scope().resolve(A)
        assert a1 is not a2

    def test_container_resolve_does_not_share_per_scope_instances(self):
        class A: ...

        self.cont.register_per_scope(A)
        assert self.cont.resolve(A) is not self.cont.resolve(A)

    def test_per_scope_dependency_is_shared_inside_one_object_graph(self):
        class Db: ...

        class Users:
            def __init__(self, db: Db):
                self.db = db

        class Orders:
            def __init__(self, db: Db):
                self.db = db

        class Checkout:
            def __init__(self, users: Users, orders: Orders):
                self.users = users
                self.orders = orders

        self.cont.register_per_scope(Db).register_transient(Users).register_transient(Orders).register_transient(
            Checkout
        )

        checkout = self.cont.resolve(Checkout)
        assert checkout.users.db is checkout.orders.db
        assert self.cont.resolve(Checkout).users.db is not checkout.users.db

    def test_register_defaults_to_transient(self):
        class A: ...

        self.cont.register(A)
        assert self.cont.resolve(A) is not self.cont.resolve(A)
