import unittest
from errors import InterpreterError
from symbol_table import (
    ArrayBounds, DataType, ExecutionContext, SymbolTable, Variable,
    coerce_input, format_value, values_equal,
)


class TestSymbolTable(unittest.TestCase):
    def setUp(self):
        self.st = SymbolTable()
        self.globals = self.st.global_context

    def test_declare_scalar_is_uninitialized(self):
        """A declared scalar has its type but no value yet."""
        var = self.globals.declare("x", Variable(DataType.INTEGER))
        self.assertEqual(var.type, DataType.INTEGER)
        self.assertFalse(var.initialized)
        self.assertIsNone(var.value)
        self.assertFalse(var.is_array)

    def test_redeclare_replaces_variable(self):
        """Declaring the same name again starts a fresh variable."""
        first = self.globals.declare("x", Variable(DataType.INTEGER, 5, True))
        second = self.globals.declare("x", Variable(DataType.STRING))
        self.assertIsNot(first, second)
        self.assertIs(self.globals.get("x"), second)

    def test_get_undeclared_raises(self):
        """Looking up an unknown name is a runtime error."""
        with self.assertRaises(InterpreterError) as cm:
            self.globals.get("missing")
        self.assertIn("Variable 'missing' not declared", str(cm.exception))

    def test_call_context_sees_globals_only(self):
        """Callee contexts chain to the globals, not to other locals."""
        g = self.globals.declare("g", Variable(DataType.INTEGER, 1, True))
        caller = self.st.new_call_context()
        caller.declare("local", Variable(DataType.INTEGER, 2, True))
        callee = self.st.new_call_context()
        self.assertIs(callee.lookup("g"), g)
        self.assertIsNone(callee.lookup("local"))

    def test_local_shadows_global(self):
        """A local with the same name hides the global."""
        self.globals.declare("n", Variable(DataType.INTEGER, 1, True))
        local = self.st.new_call_context()
        shadow = local.declare("n", Variable(DataType.INTEGER, 2, True))
        self.assertIs(local.get("n"), shadow)
        self.assertEqual(self.globals.get("n").value, 1)

    def test_resolve_type_case_insensitive(self):
        """Type names resolve regardless of case."""
        self.assertEqual(self.st.resolve_type("real"), DataType.REAL)
        self.assertEqual(self.st.resolve_type("CHAR"), DataType.CHAR)
        with self.assertRaises(InterpreterError):
            self.st.resolve_type("DATE")

    def test_snapshot_globals(self):
        """The snapshot reports type, value and initialized flag per global."""
        self.globals.declare("x", Variable(DataType.INTEGER, 3, True))
        self.globals.declare("y", Variable(DataType.STRING))
        arr = self.globals.declare(
            "a", Variable.new_array(ArrayBounds([(1, 3)], DataType.INTEGER)))
        arr.set_element("a", [2], 9)

        snap = self.st.snapshot_globals()
        self.assertEqual(snap["x"], {'type': 'INTEGER', 'value': 3, 'initialized': True})
        self.assertFalse(snap["y"]["initialized"])
        self.assertEqual(snap["a"]["type"], "ARRAY")
        self.assertEqual(snap["a"]["value"], {(2,): 9})


class TestArrays(unittest.TestCase):
    def setUp(self):
        self.grid = Variable.new_array(ArrayBounds([(0, 2), (-1, 1)], DataType.STRING))

    def test_all_slots_allocated_uninitialized(self):
        """Every slot across both dimensions exists and is unassigned."""
        slots = list(self.grid.elements())
        self.assertEqual(len(slots), 9)
        self.assertEqual(slots[0][0], (0, -1))
        self.assertTrue(all(not slot.initialized for _, slot in slots))

    def test_set_and_get_element(self):
        """Assigning a slot marks it initialized."""
        self.grid.set_element("grid", [1, -1], "x")
        self.assertEqual(self.grid.get_element("grid", [1, -1]), "x")

    def test_read_before_assignment(self):
        """Reading an unassigned slot fails."""
        with self.assertRaises(InterpreterError) as cm:
            self.grid.get_element("grid", [0, 0])
        self.assertIn("accessed before assignment", str(cm.exception))

    def test_out_of_bounds(self):
        """Indices outside a dimension's bounds are rejected."""
        with self.assertRaises(InterpreterError) as cm:
            self.grid.set_element("grid", [3, 0], "x")
        self.assertIn("out of bounds", str(cm.exception))

    def test_wrong_index_count(self):
        """The number of indices must match the number of dimensions."""
        with self.assertRaises(InterpreterError) as cm:
            self.grid.get_element("grid", [1])
        self.assertIn("expects 2 index(es), got 1", str(cm.exception))

    def test_copy_is_independent(self):
        """A copied array does not share slots with the original."""
        self.grid.set_element("grid", [0, 0], "a")
        clone = self.grid.copy()
        clone.set_element("grid", [0, 0], "b")
        self.assertEqual(self.grid.get_element("grid", [0, 0]), "a")
        self.assertEqual(clone.element_type, DataType.STRING)


class TestValues(unittest.TestCase):
    def test_format_value(self):
        """Display strings used by OUTPUT and &."""
        self.assertEqual(format_value(True), "TRUE")
        self.assertEqual(format_value(False), "FALSE")
        self.assertEqual(format_value(5.0), "5")
        self.assertEqual(format_value(2.5), "2.5")
        self.assertEqual(format_value("hi"), "hi")

    def test_values_equal(self):
        """Numbers compare numerically and booleans only equal booleans."""
        self.assertTrue(values_equal(3, 3.0))
        self.assertTrue(values_equal("a", "a"))
        self.assertFalse(values_equal(1, True))
        self.assertFalse(values_equal("1", 1))

    def test_coerce_input(self):
        """INPUT text is converted to the target type with silent fallbacks."""
        self.assertEqual(coerce_input("42", DataType.INTEGER), 42)
        self.assertEqual(coerce_input("abc", DataType.INTEGER), 0)
        self.assertEqual(coerce_input("2.5", DataType.REAL), 2.5)
        self.assertEqual(coerce_input("x", DataType.REAL), 0.0)
        self.assertTrue(coerce_input("True", DataType.BOOLEAN))
        self.assertFalse(coerce_input("yes", DataType.BOOLEAN))
        self.assertEqual(coerce_input(" raw ", DataType.STRING), " raw ")

    def test_coerce_input_accepts_only_plain_numbers(self):
        """Underscores, inf and nan read as zero like any other bad number."""
        for text in ("1_000", "inf", "nan", "0x10", "\u0661"):
            self.assertEqual(coerce_input(text, DataType.INTEGER), 0)
            self.assertEqual(coerce_input(text, DataType.REAL), 0.0)
        self.assertEqual(coerce_input(" +7 ", DataType.INTEGER), 7)
        self.assertEqual(coerce_input(".5", DataType.REAL), 0.5)
        self.assertEqual(coerce_input("2e3", DataType.REAL), 2000.0)


if __name__ == '__main__':
    unittest.main()
