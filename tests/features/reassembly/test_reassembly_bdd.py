"""BDD tests for log-line reassembly features."""

import pytest
from pytest_bdd import scenarios

scenarios("reassembly.feature")

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Reassembly.EndToEnd"),
    pytest.mark.reassembly,
]
