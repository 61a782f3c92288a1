"""
Validation registry tests
"""

import dataclasses
import threading
import unittest

from pyresty.validation import ActionHandle, ErrorList, ValidationRegistry
from pyresty.validation import new_errors


def action_a(params, ctx):
    raise NotImplementedError()


def action_b(params, ctx):
    raise NotImplementedError()


def step_1(params, ctx, errors):
    pass


def step_2(params, ctx, errors):
    pass


class ErrorListTests(unittest.TestCase):
    def test_collect(self):
        errors = ErrorList()
        self.assertFalse(errors.has_error())
        self.assertEqual(errors.to_json(), {'errors': []})

        errors.add_error("first")
        errors.add_error("second")
        self.assertTrue(errors.has_error())
        self.assertEqual(errors.to_json(), {'errors': ["first", "second"]})

    def test_new_errors(self):
        self.assertEqual(new_errors().errors, [])
        errors = new_errors("a", "b")
        self.assertTrue(errors.has_error())
        self.assertEqual(errors.errors, ["a", "b"])


class RegistryTests(unittest.TestCase):
    def test_register(self):
        handle = self.registry.register(action_a)
        self.assertIsInstance(handle, ActionHandle)
        self.assertEqual(handle.name, 'action_a')
        self.assertIs(handle.func, action_a)

        self.assertIs(self.registry.register(action_a), handle)
        self.assertIs(self.registry.register(handle), handle)

        other = self.registry.register(action_b, 'custom name')
        self.assertNotEqual(other.ident, handle.ident)
        self.assertEqual(other.name, 'custom name')
        self.assertEqual(repr(other), f"<ActionHandle #{other.ident} custom "
            f"name>")

    def test_handle_call(self):
        handle = self.registry.register(lambda params, ctx: (params, ctx))
        self.assertEqual(handle(1, 2), (1, 2))

    def test_no_validators(self):
        self.assertIsNone(self.registry.get_validators(action_a))

        handle = self.registry.register(action_a)
        self.assertIsNone(self.registry.get_validators(handle))
        self.assertIsNone(self.registry.get_validators(action_a))

    def test_add_validator(self):
        self.registry.add_validator(action_a, step_1)
        self.registry.add_validator(action_a, step_2)
        self.registry.add_validator(action_a, step_1)

        handle = self.registry.register(action_a)
        self.assertEqual(self.registry.get_validators(action_a),
            (step_1, step_2, step_1))
        self.assertEqual(self.registry.get_validators(handle),
            (step_1, step_2, step_1))

        self.assertIsNone(self.registry.get_validators(action_b))

    def test_decorator(self):
        handle = self.registry.register(action_b)

        @self.registry.validator(handle)
        def check(params, ctx, errors):
            pass

        self.assertEqual(self.registry.get_validators(action_b), (check,))

    def test_snapshot(self):
        self.registry.add_validator(action_a, step_1)
        steps = self.registry.get_validators(action_a)

        self.registry.add_validator(action_a, step_2)
        self.assertEqual(steps, (step_1,))
        self.assertEqual(self.registry.get_validators(action_a),
            (step_1, step_2))

    def test_bound_methods(self):
        class Resource:
            def get(self, params, ctx):
                raise NotImplementedError()

        resource = Resource()
        self.registry.add_validator(resource.get, step_1)

        self.assertEqual(self.registry.get_validators(resource.get), (step_1,))
        self.assertIsNone(self.registry.get_validators(Resource().get))

    def test_unhashable_action(self):
        @dataclasses.dataclass
        class Greeter:
            greeting: str

            def __call__(self, params, ctx):
                return self.greeting

        greeter = Greeter("hi")
        twin = Greeter("hi")
        self.assertEqual(greeter, twin)

        handle = self.registry.register(greeter)
        self.assertIs(self.registry.register(greeter), handle)
        self.assertIsNot(self.registry.register(twin), handle)
        self.assertEqual(handle(None, None), "hi")

        self.registry.add_validator(greeter, step_1)
        self.assertEqual(self.registry.get_validators(greeter), (step_1,))
        self.assertEqual(self.registry.get_validators(handle), (step_1,))
        self.assertIsNone(self.registry.get_validators(twin))

    def test_separate_registries(self):
        self.registry.add_validator(action_a, step_1)
        self.assertIsNone(ValidationRegistry().get_validators(action_a))

    def test_concurrent_registration(self):
        actions = [self._make_action() for _ in range(20)]
        barrier = threading.Barrier(len(actions))

        def register(action):
            barrier.wait()
            for _ in range(50):
                self.registry.add_validator(action, step_1)
                self.registry.get_validators(action)

        threads = [threading.Thread(target=register, args=(action,))
            for action in actions]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        idents = set()
        for action in actions:
            self.assertEqual(len(self.registry.get_validators(action)), 50)
            idents.add(self.registry.register(action).ident)

        self.assertEqual(len(idents), len(actions))

    def setUp(self):
        self.registry = ValidationRegistry()

    @staticmethod
    def _make_action():
        def action(params, ctx):
            raise NotImplementedError()

        return action
