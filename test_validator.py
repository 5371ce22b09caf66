import pytest
from validator import SyntaxValidator, ValidationError


@pytest.fixture
def validator():
    return SyntaxValidator("editor.pse")

def test_valid_program_has_no_errors(validator):
    source = "DECLARE x : INTEGER\nx <- 5\nOUTPUT x"
    assert validator.validate(source) == []
    assert validator.is_valid(source)

def test_blank_source_is_valid(validator):
    assert validator.validate("   \n\n") == []

def test_parser_error_reports_line(validator):
    errors = validator.validate("x <- 1\nIF x > 0\n OUTPUT x\nENDIF")
    assert len(errors) == 1
    error = errors[0]
    assert isinstance(error, ValidationError)
    assert error.line == 3
    assert error.error_type == "Syntax"
    assert "Expected THEN" in error.message

def test_lexer_error_reports_line(validator):
    errors = validator.validate('OUTPUT 1\nOUTPUT "open')
    assert errors[0].line == 2
    assert "Unterminated string" in errors[0].message
    assert not validator.is_valid('OUTPUT "open')

def test_runtime_errors_are_not_reported(validator):
    # Only syntax is checked; nothing is executed
    assert validator.validate("OUTPUT 1 / 0\nOUTPUT undefined") == []

def test_line_recovered_from_message():
    class Stub:
        line = 0
        message = "Expected ENDIF at line 7"
    assert SyntaxValidator._line_of(Stub()) == 7
    Stub.message = "no position"
    assert SyntaxValidator._line_of(Stub()) == 1
