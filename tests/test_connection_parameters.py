import dataclasses

import pytest

from core.models.connection_parameters import ConnectionParameters


class TestConnectionParameters:
    def test_empty_name_raises_value_error(self):
        with pytest.raises(ValueError):
            ConnectionParameters(host="localhost", username="root", name="")

    def test_is_immutable(self, params):
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.name = "other"

    def test_full_client_args(self, params):
        assert params.client_args() == [
            "-P", "3307", "-h", "db.local", "-u", "backup", "-psecret",
        ]

    def test_port_can_be_left_out(self, params):
        assert params.client_args(include_port=False) == [
            "-h", "db.local", "-u", "backup", "-psecret",
        ]

    def test_empty_port_is_omitted(self):
        params = ConnectionParameters(host="h", username="u", name="db", password="pw")
        assert "-P" not in params.client_args()

    def test_empty_password_adds_no_flag(self):
        params = ConnectionParameters(host="h", username="u", name="db", port="3306")
        args = params.client_args()
        assert args == ["-P", "3306", "-h", "h", "-u", "u"]
        assert not any(a.startswith("-p") for a in args)

    def test_password_is_a_single_token(self):
        params = ConnectionParameters(host="h", username="u", name="db", password="p w;`x")
        assert params.client_args()[-1] == "-pp w;`x"
