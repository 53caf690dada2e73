from chaosmatrix.errors import ErrorResponse, ToolError, error_response, success_response


def test_error_response_serializes_details():
    error = ErrorResponse(code="TASK_NOT_FOUND", message="Nope", details={"id": "abc"})

    assert error.to_dict() == {
        "code": "TASK_NOT_FOUND",
        "message": "Nope",
        "details": {"id": "abc"},
    }


def test_tool_error_defaults_details():
    exc = ToolError("INVALID_TYPE", "Bad id")

    assert exc.error.to_dict() == {
        "code": "INVALID_TYPE",
        "message": "Bad id",
        "details": {},
    }


def test_envelopes():
    assert success_response({"tasks": []}) == {"ok": True, "data": {"tasks": []}}
    error = ErrorResponse(code="X", message="y")
    assert error_response(error) == {
        "ok": False,
        "error": {"code": "X", "message": "y", "details": {}},
    }


def test_tool_error_exposes_code_and_readable_message():
    exc = ToolError("CLIENT_NAME_REQUIRED", "clientName is required.", {"category": "client"})

    assert exc.code == "CLIENT_NAME_REQUIRED"
    assert str(exc) == "CLIENT_NAME_REQUIRED: clientName is required."
