import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from osc_cost.pricing.catalog import Catalog  # noqa: E402


def _entry(service, type_, operation, price):
    return {"Service": service, "Type": type_, "Operation": operation, "UnitPrice": price}


CATALOG_ENTRIES = [
    _entry("TinaOS-FCU", "CustomCore:v5-p1", "RunInstances-OD", 0.05),
    _entry("TinaOS-FCU", "CustomCore:v5-p2", "RunInstances-OD", 0.04),
    _entry("TinaOS-FCU", "CustomCore:v4-p3", "RunInstances-OD", 0.02),
    _entry("TinaOS-FCU", "CustomRam", "RunInstances-OD", 0.005),
    _entry("TinaOS-FCU", "BoxUsage:m4.large", "RunInstances-OD", 0.2),
    _entry("TinaOS-FCU", "BoxUsage:zz9.large", "RunInstances-OD", 0.1),
    _entry("TinaOS-FCU", "ProductUsage", "RunInstances-0001-OD", 0.0),
    _entry("TinaOS-FCU", "ProductUsage", "RunInstances-0002-OD", 0.1),
    _entry("TinaOS-FCU", "ProductUsage", "RunInstances-0003-OD", 0.3),
    _entry("TinaOS-FCU", "ProductUsage", "RunInstances-0008-OD", 0.5),
    _entry("TinaOS-FCU", "ProductUsage", "RunInstances-0009-OD", 1.0),
    _entry("TinaOS-FCU", "BSU:VolumeUsage:gp2", "CreateVolume", 0.11),
    _entry("TinaOS-FCU", "BSU:VolumeUsage:io1", "CreateVolume", 0.13),
    _entry("TinaOS-FCU", "BSU:VolumeIOPS:io1", "CreateVolume", 0.01),
    _entry("TinaOS-FCU", "Snapshot:Usage", "Snapshot", 0.05),
    _entry("TinaOS-FCU", "ElasticIP:IdleAddress", "AssociateAddressVPC", 0.005),
    _entry("TinaOS-FCU", "ElasticIP:AdditionalAddress", "AssociateAddressVPC", 0.004),
    _entry("TinaOS-FCU", "NatGatewayUsage", "CreateNatGateway", 0.05),
    _entry("TinaOS-FCU", "Gpu:attach:nvidia-p100", "AllocateGpu", 1.5),
    _entry("TinaOS-FCU", "Gpu:allocate:nvidia-p100", "AllocateGpu", 0.3),
    _entry("TinaOS-LBU", "LBU:Usage", "CreateLoadBalancer", 0.03),
    _entry("TinaOS-FCU", "ConnectionUsage", "CreateVpnConnection", 0.05),
    _entry("TinaOS-OOS", "enterprise", "OOSStorage", 0.02),
    _entry("TinaOS-FCU", "UseDedicated", "RunDedicatedInstances", 2.0),
]

VM_TYPES = [
    {"VmTypeName": "m4.large", "VcoreCount": 2, "MemorySize": 8},
    {"VmTypeName": "zz9.large", "VcoreCount": 4, "MemorySize": 16},
    {"VmTypeName": "c4.novcpu", "MemorySize": 4},
]


@pytest.fixture
def catalog_entries():
    return [dict(e) for e in CATALOG_ENTRIES]


@pytest.fixture
def catalog(catalog_entries):
    return Catalog.build(catalog_entries)


@pytest.fixture
def snapshot_data(catalog_entries):
    """A small account with one resource of every kind."""
    return {
        "AccountId": "123456789012",
        "Region": "eu-west-2",
        "FetchDate": "2024-01-02T10:00:00+00:00",
        "Catalog": {"Entries": catalog_entries},
        "VmTypes": [dict(v) for v in VM_TYPES],
        "Vms": [
            {
                "VmId": "i-tina",
                "VmType": "tinav5.c2r4p2",
                "Performance": "high",
                "State": "running",
                "ImageId": "ami-1",
                "ProductCodes": ["0001"],
                "PublicIp": "1.1.1.1",
            },
            {
                "VmId": "i-box",
                "VmType": "m4.large",
                "Performance": "high",
                "State": "running",
                "ProductCodes": ["0001"],
            },
            {"VmId": "i-stopped", "VmType": "tinav5.c2r4p2", "Performance": "high", "State": "stopped"},
        ],
        "Volumes": [{"VolumeId": "vol-1", "VolumeType": "gp2", "Size": 10}],
        "Snapshots": [{"SnapshotId": "snap-1", "VolumeSize": 20}],
        "PublicIps": [
            {"PublicIpId": "eipalloc-1", "PublicIp": "1.1.1.1", "LinkPublicIpId": "eipassoc-1", "VmId": "i-tina"},
            {"PublicIpId": "eipalloc-2", "PublicIp": "2.2.2.2"},
        ],
        "NatServices": [{"NatServiceId": "nat-1"}],
        "FlexibleGpus": [{"FlexibleGpuId": "fgpu-1", "ModelName": "nvidia-p100", "State": "attached"}],
        "LoadBalancers": [{"LoadBalancerName": "lb-1"}],
        "VpnConnections": [{"VpnConnectionId": "vpn-1"}],
        "Buckets": [{"Name": "bucket-1", "Objects": [{"Size": 2 ** 30}, {"Size": 2 ** 30}]}],
    }


@pytest.fixture
def vm_types():
    return {v["VmTypeName"]: dict(v) for v in VM_TYPES}
