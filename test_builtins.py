import pytest
from builtins_handler import BUILTIN_NAMES, call_builtin, check_arity, is_builtin
from errors import InterpreterError
from file_handler import SimulatedFileSystem


def test_builtin_names_are_case_insensitive():
    assert is_builtin("length")
    assert is_builtin("Eof")
    assert not is_builtin("Total")
    assert "SUBSTRING" in BUILTIN_NAMES

def test_length_and_case():
    assert call_builtin("LENGTH", ["hello"]) == 5
    assert call_builtin("ucase", ["MiXeD"]) == "MIXED"
    assert call_builtin("LCASE", ["MiXeD"]) == "mixed"

def test_string_functions_need_strings():
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("LENGTH", [42])
    assert "LENGTH requires string parameter" in str(excinfo.value)

@pytest.mark.parametrize("start, length, expected", [
    (1, 3, "hel"),
    (2, 3, "ell"),
    (4, 10, "lo"),
    (6, 2, ""),
    (2.0, 0, ""),
])
def test_substring_is_one_based_and_clamped(start, length, expected):
    assert call_builtin("SUBSTRING", ["hello", start, length]) == expected

def test_substring_rejects_bad_positions():
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("SUBSTRING", ["hello", 0, 2])
    assert "start position must be 1 or greater" in str(excinfo.value)
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("SUBSTRING", ["hello", 1, -1])
    assert "length cannot be negative" in str(excinfo.value)
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("SUBSTRING", [5, 1, 1])
    assert "type mismatch" in str(excinfo.value)

def test_int_conversion():
    assert call_builtin("INT", [3.7]) == 3
    assert call_builtin("INT", [-3.2]) == -4
    assert call_builtin("INT", [" 12 "]) == 12
    assert call_builtin("INT", ["3.7"]) == 0
    assert call_builtin("INT", [True]) == 1
    assert call_builtin("INT", ["1_000"]) == 0
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("INT", [float("inf")])
    assert "Cannot convert inf to an integer" in str(excinfo.value)

def test_real_conversion():
    assert call_builtin("REAL", ["2.5"]) == 2.5
    assert call_builtin("REAL", [4]) == 4.0
    assert call_builtin("REAL", ["x"]) == 0.0
    assert call_builtin("REAL", ["nan"]) == 0.0
    with pytest.raises(InterpreterError) as excinfo:
        call_builtin("REAL", [10 ** 400])
    assert "Number too large" in str(excinfo.value)

def test_string_conversion_uses_display_form():
    assert call_builtin("STRING", [7.0]) == "7"
    assert call_builtin("STRING", [False]) == "FALSE"

def test_round():
    assert call_builtin("ROUND", [3.14159, 2]) == 3.14
    assert call_builtin("ROUND", [2.6, 0]) == 3
    with pytest.raises(InterpreterError):
        call_builtin("ROUND", ["x", 1])
    for places in (400, -400):
        with pytest.raises(InterpreterError) as excinfo:
            call_builtin("ROUND", [1.5, places])
        assert "ROUND result out of range" in str(excinfo.value)

def test_random_range():
    for _ in range(50):
        value = call_builtin("RANDOM", [])
        assert 0 <= value < 1

def test_arity_messages():
    check_arity("ROUND", 2)
    with pytest.raises(InterpreterError) as excinfo:
        check_arity("ROUND", 1)
    assert "ROUND requires 2 parameters" in str(excinfo.value)
    with pytest.raises(InterpreterError) as excinfo:
        check_arity("random", 2)
    assert "RANDOM takes no parameters" in str(excinfo.value)

def test_eof_uses_file_system():
    files = SimulatedFileSystem(upload_handler=lambda name: "only line")
    files.open("data", "READ")
    assert call_builtin("EOF", ["data"], files) is False
    files.read_line("data")
    assert call_builtin("eof", ["data"], files) is True
