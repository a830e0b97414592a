import pytest

from silkctl.checkfakes import (
    FakeDatabaseChecker,
    FakeErrorResponse,
    FakeHardwareAddressGenerator,
)
from silkctl.logsession import Logger


def test_database_checker_succeeds_by_default_and_counts_calls():
    checker = FakeDatabaseChecker()
    assert checker.check_database() is None
    assert checker.check_database.call_count() == 1


def test_database_checker_raises_configured_error():
    checker = FakeDatabaseChecker()
    checker.check_database.raises(RuntimeError("pineapple"))
    with pytest.raises(RuntimeError, match="pineapple"):
        checker.check_database()
    assert checker.check_database.call_count() == 1


def test_database_checker_error_on_specific_call():
    checker = FakeDatabaseChecker()
    checker.check_database.raises_on_call(1, RuntimeError("pineapple"))
    assert checker.check_database() is None
    with pytest.raises(RuntimeError, match="pineapple"):
        checker.check_database()
    assert checker.check_database() is None
    assert checker.check_database.call_count() == 3


def test_database_checker_invocations():
    checker = FakeDatabaseChecker()
    checker.check_database()
    checker.check_database()
    assert checker.invocations() == {"check_database": [(), ()]}


def test_error_response_records_arguments_per_method():
    fake = FakeErrorResponse()
    logger = Logger("test").session("health")
    response = object()
    err = RuntimeError("pineapple")

    fake.internal_server_error(logger, response, err, "check database failed")

    assert fake.internal_server_error.call_count() == 1
    assert fake.bad_request.call_count() == 0
    assert fake.conflict.call_count() == 0
    got_logger, got_response, got_err, description = fake.internal_server_error.args_for_call(0)
    assert got_logger == logger
    assert got_response is response
    assert str(got_err) == "pineapple"
    assert description == "check database failed"


def test_error_response_stub_receives_arguments():
    fake = FakeErrorResponse()
    seen = []
    fake.conflict.stub = lambda *args: seen.append(args)
    err = RuntimeError("no lease available")

    fake.conflict("logger", "writer", err, "no lease available")

    assert seen == [("logger", "writer", err, "no lease available")]
    assert fake.conflict.call_count() == 1


def test_error_response_invocations_grouped_by_name():
    fake = FakeErrorResponse()
    err = ValueError("fig")
    fake.bad_request("l", "w", err, "unmarshal-request: fig")
    fake.conflict("l", "w", err, "renew-subnet-lease: fig")
    fake.bad_request("l", "w", err, "read-body: fig")

    invocations = fake.invocations()
    assert sorted(invocations) == ["bad_request", "conflict"]
    assert [call[3] for call in invocations["bad_request"]] == [
        "unmarshal-request: fig",
        "read-body: fig",
    ]
    assert invocations["conflict"] == [("l", "w", err, "renew-subnet-lease: fig")]


def test_hardware_address_generator_returns_configured_value():
    generator = FakeHardwareAddressGenerator()
    generator.generate_for_vtep.returns("ee:ee:0a:ff:11:00")

    assert generator.generate_for_vtep("10.255.17.0") == "ee:ee:0a:ff:11:00"
    assert generator.generate_for_vtep.args_for_call(0) == ("10.255.17.0",)


def test_hardware_address_generator_per_call_results():
    generator = FakeHardwareAddressGenerator()
    generator.generate_for_vtep.returns("ee:ee:0a:ff:11:00")
    generator.generate_for_vtep.returns_on_call(0, "ee:ee:0a:ff:5d:0f")

    assert generator.generate_for_vtep("10.255.93.0") == "ee:ee:0a:ff:5d:0f"
    assert generator.generate_for_vtep("10.255.17.0") == "ee:ee:0a:ff:11:00"


def test_hardware_address_generator_raises():
    generator = FakeHardwareAddressGenerator()
    generator.generate_for_vtep.raises(ValueError("bad ip"))
    with pytest.raises(ValueError, match="bad ip"):
        generator.generate_for_vtep("not-an-ip")
    assert generator.invocations() == {"generate_for_vtep": [("not-an-ip",)]}


def test_invocations_returns_a_copy():
    generator = FakeHardwareAddressGenerator()
    generator.generate_for_vtep("10.255.17.0")
    snapshot = generator.invocations()
    snapshot["generate_for_vtep"].append(("extra",))
    snapshot["other"] = []

    assert generator.invocations() == {"generate_for_vtep": [("10.255.17.0",)]}


def test_fakes_do_not_share_recorders():
    first = FakeDatabaseChecker()
    second = FakeDatabaseChecker()
    first.check_database()

    assert second.invocations() == {}
    assert second.check_database.call_count() == 0
    assert first.check_database.call_count() == 1