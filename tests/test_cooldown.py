import unittest

from modules.cooldown import CooldownGate, MemoryRegistry


class TestMemoryRegistry(unittest.TestCase):

    def test_get_set_unset(self):
        registry = MemoryRegistry()
        self.assertIsNone(registry.get("a"))
        registry.set("a", 1.5)
        self.assertEqual(registry.get("a"), 1.5)
        registry.unset("a")
        self.assertIsNone(registry.get("a"))
        registry.unset("a")  # unknown keys are fine


class TestCooldownGate(unittest.TestCase):

    def setUp(self):
        self.registry = MemoryRegistry()
        self.gate = CooldownGate(self.registry, 3)

    def test_unknown_key_is_allowed(self):
        self.assertTrue(self.gate.check("k", 100.0))

    def test_blocked_inside_interval(self):
        self.gate.arm("k", 100.0)
        self.assertFalse(self.gate.check("k", 102.9))

    def test_boundary_is_inclusive(self):
        self.gate.arm("k", 100.0)
        self.assertTrue(self.gate.check("k", 103.0))

    def test_expired_entry_is_cleared(self):
        self.gate.arm("k", 100.0)
        self.gate.check("k", 200.0)
        self.assertEqual(len(self.registry), 0)

    def test_keys_are_independent(self):
        self.gate.arm("a", 100.0)
        self.assertTrue(self.gate.check("b", 100.0))

    def test_in_flight_key_is_blocked(self):
        self.assertTrue(self.gate.try_enter("k", 100.0))
        self.assertFalse(self.gate.try_enter("k", 100.0))

    def test_release_does_not_arm(self):
        self.gate.try_enter("k", 100.0)
        self.gate.release("k")
        self.assertIsNone(self.registry.get("k"))
        self.assertTrue(self.gate.try_enter("k", 100.0))

    def test_arm_clears_in_flight(self):
        self.gate.try_enter("k", 100.0)
        self.gate.arm("k", 100.0)
        self.assertFalse(self.gate.try_enter("k", 101.0))
        self.assertTrue(self.gate.try_enter("k", 103.0))


if __name__ == '__main__':
    unittest.main()
