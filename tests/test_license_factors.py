import pytest

from osc_cost.resolvers.types import LicenseRule


@pytest.mark.parametrize(
    "vcpu, expected",
    [(1, 1.0), (2, 2.0), (3, 2.0), (4, 3.0), (10, 6.0)],
)
def test_per_two_core_rounds_up(vcpu, expected):
    rule = LicenseRule(code="0002", kind="per_core", divisor=2)

    assert rule.factor(vcpu) == expected


@pytest.mark.parametrize(
    "vcpu, expected",
    [(1, 4.0), (4, 4.0), (6, 4.0), (7, 4.0), (8, 5.0), (10, 6.0)],
)
def test_premium_has_four_unit_floor(vcpu, expected):
    rule = LicenseRule(code="0008", kind="per_core", divisor=2, floor=4)

    assert rule.factor(vcpu) == expected


def test_flat_shapes_ignore_size():
    assert LicenseRule(code="0001", kind="free").factor(64) == 0.0
    assert LicenseRule(code="0003", kind="per_vm").factor(64) == 1.0
    assert LicenseRule(code="0003", kind="per_vm").factor(1) == 1.0
