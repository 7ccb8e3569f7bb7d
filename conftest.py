"""Shared pytest fixtures."""

import pytest


def scripted(*draws):
    """Random source returning ``draws`` in order."""
    it = iter(draws)
    return lambda: next(it)


def forbidden():
    raise AssertionError("random source consulted")


@pytest.fixture
def scripted_rng():
    return scripted


@pytest.fixture
def no_rng():
    return forbidden


@pytest.fixture
def quiet_cfg():
    return {'log_level': 'ERROR', 'global_seed': 7}
