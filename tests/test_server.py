import server


def test_dev_run_binds_loopback_with_reload():
    opts = server.run_options({"PORT": "9001"})

    assert opts["host"] == "127.0.0.1"
    assert opts["port"] == 9001
    assert opts["reload"] is True


def test_hosted_run_binds_all_interfaces_without_reload():
    opts = server.run_options({"ENV": "prod"})

    assert opts["host"] == "0.0.0.0"
    assert opts["port"] == 8000
    assert opts["reload"] is False
    assert opts["log_level"] == opts["log_level"].lower()
