import pytest

from osc_cost.errors import DefinitionError
from osc_cost.resolvers.loader import (
    default_license_table,
    default_vm_families,
    load_license_table,
    load_vm_families,
)


def _write(tmp_path, text, name="licenses.yaml"):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_bundled_license_table():
    table = default_license_table()

    assert table.get("0001").kind == "free"
    assert table.get("0002").kind == "per_core"
    assert table.get("0003").kind == "per_vm"
    assert table.get("0008").floor == 4
    assert "0042" not in table


def test_bundled_families():
    families = default_vm_families()

    assert families["m4"].generation == "4"
    assert all(f.performance for f in families.values())


def test_custom_license_table(tmp_path):
    p = _write(
        tmp_path,
        """
licenses:
  - code: "0100"
    kind: per_core
    divisor: 4
    floor: 1
  - code: "0101"
    kind: FREE
""",
    )

    table = load_license_table(p)

    assert table.get("0100").factor(8) == 3.0
    assert table.get("0101").kind == "free"


@pytest.mark.parametrize(
    "text",
    [
        "licenses:\n  - kind: free\n",
        "licenses:\n  - code: '0100'\n    kind: tiered\n",
        "licenses:\n  - code: '0100'\n    kind: per_core\n    divisor: 0\n",
        "licenses:\n  - code: '0100'\n    kind: per_core\n    floor: -1\n",
        "licenses:\n  - code: '0100'\n    kind: free\n  - code: '0100'\n    kind: per_vm\n",
        "- not a mapping\n",
        "description: no licenses key\n",
    ],
)
def test_invalid_license_table(tmp_path, text):
    with pytest.raises(DefinitionError):
        load_license_table(_write(tmp_path, text))


def test_invalid_families(tmp_path):
    with pytest.raises(DefinitionError):
        load_vm_families(_write(tmp_path, "families:\n  m4: {generation: '4'}\n", "vm_families.yaml"))
    with pytest.raises(ValueError):
        load_vm_families(tmp_path / "missing.yaml")
