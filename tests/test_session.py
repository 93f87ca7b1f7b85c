import dataclasses

import pytest

from minipgw.session import Session


def test_session_keeps_imsi():
    assert Session("001010123456789").imsi == "001010123456789"


def test_sessions_compare_by_imsi():
    assert Session("001010123456") == Session("001010123456")
    assert Session("001010123456") != Session("001010654321")


def test_session_is_immutable():
    session = Session("001010123456")
    with pytest.raises(dataclasses.FrozenInstanceError):
        session.imsi = "999999"
    assert session.imsi == "001010123456"


def test_session_is_hashable():
    assert len({Session("123456"), Session("123456"), Session("654321")}) == 2