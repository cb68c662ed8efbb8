import json

import pytest

from osc_cost.core.resources import DedicatedInstance, PublicIp, Vm, Volume
from osc_cost.inventory import Inventory
from osc_cost.resolvers.registry import build_default_registry
from osc_cost.utils.trace import build_trace_logger


def _resources(data, **kwargs):
    inventory = Inventory.from_dict(data)
    resources = inventory.to_resources(inventory.context(**kwargs))
    resources.compute()
    return resources


def _by_type(resources):
    out = {}
    for r in resources:
        out.setdefault(r.resource_type, []).append(r)
    return out


def test_every_kind_is_resolved(snapshot_data):
    by_type = _by_type(_resources(snapshot_data))

    assert sorted(by_type) == sorted(
        ["Vm", "Volume", "Snapshot", "PublicIp", "NatServices", "FlexibleGpu", "LoadBalancer", "Vpn", "Oos"]
    )
    assert [vm.resource_id for vm in by_type["Vm"]] == ["i-tina", "i-box"]
    assert by_type["Volume"][0].price_per_month == pytest.approx(10 * 0.11)
    assert by_type["Snapshot"][0].price_per_month == pytest.approx(20 * 0.05)
    assert by_type["NatServices"][0].price_per_hour == pytest.approx(0.05)
    assert by_type["FlexibleGpu"][0].price_per_hour == pytest.approx(1.5)
    assert by_type["LoadBalancer"][0].resource_id == "lb-1"
    assert by_type["Vpn"][0].price_per_month == pytest.approx(0.05 * 730)
    assert by_type["Oos"][0].size_gb == pytest.approx(2.0)
    assert by_type["Oos"][0].number_files == 2
    assert by_type["Oos"][0].price_per_month == pytest.approx(2 * 0.02)


def test_envelope_is_copied_on_every_resource(snapshot_data):
    for r in _resources(snapshot_data):
        assert r.account_id == "123456789012"
        assert r.region == "eu-west-2"
        assert r.read_date_rfc3339 == "2024-01-02T10:00:00+00:00"
        assert r.osc_cost_version


def test_public_ip_states(snapshot_data):
    snapshot_data["PublicIps"].append(
        {"PublicIpId": "eipalloc-3", "PublicIp": "3.3.3.3", "LinkPublicIpId": "eipassoc-3", "VmId": "i-tina"}
    )
    snapshot_data["PublicIps"].append({"PublicIpId": "eipalloc-4", "PublicIp": "4.4.4.4", "LinkPublicIpId": "eni-1"})

    ips = {r.resource_id: r for r in _resources(snapshot_data) if isinstance(r, PublicIp)}

    assert sorted(ips) == ["eipalloc-1", "eipalloc-2", "eipalloc-3"]
    assert ips["eipalloc-1"].price_per_hour == 0.0
    assert ips["eipalloc-2"].price_per_hour == pytest.approx(0.005)
    assert ips["eipalloc-3"].price_per_hour == pytest.approx(0.004)


def test_public_ip_on_stopped_vm_is_dropped(snapshot_data):
    snapshot_data["PublicIps"] = [
        {"PublicIpId": "eipalloc-9", "PublicIp": "9.9.9.9", "LinkPublicIpId": "eipassoc-9", "VmId": "i-stopped"}
    ]

    assert not [r for r in _resources(snapshot_data) if isinstance(r, PublicIp)]


def test_gpu_price_follows_state(snapshot_data):
    snapshot_data["FlexibleGpus"] = [
        {"FlexibleGpuId": "fgpu-a", "ModelName": "nvidia-p100", "State": "attaching"},
        {"FlexibleGpuId": "fgpu-b", "ModelName": "nvidia-p100", "State": "allocated"},
        {"FlexibleGpuId": "fgpu-c", "ModelName": "nvidia-p100", "State": "detaching"},
        {"FlexibleGpuId": "fgpu-d", "ModelName": "nvidia-p100", "State": "deleting"},
        {"FlexibleGpuId": "fgpu-e", "ModelName": "nvidia-k2", "State": "attached"},
    ]

    gpus = {r.resource_id: r.price_per_hour for r in _resources(snapshot_data) if r.resource_type == "FlexibleGpu"}

    assert gpus == {"fgpu-a": 1.5, "fgpu-b": 0.3, "fgpu-c": 0.3}


def test_io1_volume_adds_iops(snapshot_data):
    snapshot_data["Volumes"] = [
        {"VolumeId": "vol-io", "VolumeType": "io1", "Size": 100, "Iops": 1000},
        {"VolumeId": "vol-nosize", "VolumeType": "gp2"},
        {"VolumeId": "vol-unknown", "VolumeType": "standard", "Size": 5},
    ]

    volumes = [r for r in _resources(snapshot_data) if isinstance(r, Volume)]

    assert [v.resource_id for v in volumes] == ["vol-io"]
    assert volumes[0].price_per_month == pytest.approx(100 * 0.13 + 1000 * 0.01)


def test_missing_prices_drop_resources_not_the_run(snapshot_data, caplog):
    snapshot_data["Catalog"]["Entries"] = [
        e for e in snapshot_data["Catalog"]["Entries"] if e["Type"] != "NatGatewayUsage"
    ]

    with caplog.at_level("WARNING"):
        resources = _resources(snapshot_data)

    assert "NatServices" not in _by_type(resources)
    assert "Vm" in _by_type(resources)
    assert "TinaOS-FCU/NatGatewayUsage/CreateNatGateway" in caplog.text
    assert "nat-1" in caplog.text


def test_placeholders_for_empty_kinds():
    resources = _resources(
        {"AccountId": "1", "Region": "eu-west-2", "Catalog": {"Entries": []}},
        need_default_resource=True,
    )

    by_type = _by_type(resources)
    assert "DedicatedInstance" not in by_type
    assert len(by_type) == len(build_default_registry().resource_types()) - 1
    for r in resources:
        assert r.resource_id == ""
        assert r.price_per_hour == 0.0
        assert r.price_per_month == 0.0


def test_placeholder_not_added_when_kind_has_records(snapshot_data):
    by_type = _by_type(_resources(snapshot_data, need_default_resource=True))

    assert len(by_type["Vm"]) == 2
    assert all(r.resource_id for r in by_type["Vm"])


def test_skip_resources(snapshot_data):
    by_type = _by_type(_resources(snapshot_data, skip_resources=["Vm", "Oos"]))

    assert "Vm" not in by_type
    assert "Oos" not in by_type
    assert "Volume" in by_type


def test_dedicated_instance_only_when_requested(snapshot_data):
    assert not [r for r in _resources(snapshot_data) if isinstance(r, DedicatedInstance)]

    dedicated = [r for r in _resources(snapshot_data, use_dedicated_instance=True) if isinstance(r, DedicatedInstance)]
    assert len(dedicated) == 1
    assert dedicated[0].price_per_hour == pytest.approx(2.0)

    snapshot_data["UseDedicatedInstance"] = True
    assert [r for r in _resources(snapshot_data) if isinstance(r, DedicatedInstance)]


def test_skipped_resources_are_traced(snapshot_data, tmp_path):
    snapshot_data["Vms"].append({"VmId": "i-broken", "VmType": "tinav5.c2r4", "State": "running"})
    trace_path = tmp_path / "trace.jsonl"

    _resources(snapshot_data, trace=build_trace_logger(trace_path))

    events = [json.loads(line) for line in trace_path.read_text(encoding="utf-8").splitlines()]
    assert events[0]["phase"] == "resource_skipped"
    assert events[0]["resource_type"] == "Vm"
    assert events[0]["resource_id"] == "i-broken"


def test_vm_resource_fields(snapshot_data):
    vm = next(r for r in _resources(snapshot_data) if isinstance(r, Vm) and r.resource_id == "i-tina")

    assert vm.vm_type == "tinav5.c2r4p2"
    assert vm.vm_core_performance == "high"
    assert vm.vm_image == "ami-1"
    assert vm.license_codes == "0001"
