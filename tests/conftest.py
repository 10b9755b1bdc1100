import logging

import pytest

from crisp.interview.testing import MockLLMClient, sample_document


@pytest.fixture
def llm_client():
    return MockLLMClient()


@pytest.fixture
def document():
    return sample_document()


@pytest.fixture(autouse=True)
def quiet_logging(caplog):
    caplog.set_level(logging.INFO)
