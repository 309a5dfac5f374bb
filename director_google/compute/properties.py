"""Configuration and display properties of the Compute Engine provider."""

from __future__ import annotations

from director_google.spi import (
    INSTANCE_NAME_PREFIX,
    ConfigurationProperty,
    DisplayProperty,
    Widget,
)

MORE_INFO = "<a target='_blank' href='{url}'>More Information</a>"

# Provider

REGION = ConfigurationProperty(
    config_key="region",
    name="Region",
    description=(
        "ID of the Google Compute Engine region to use.<br />"
        + MORE_INFO.format(url="https://cloud.google.com/compute/docs/zones")
    ),
    default_value="us-central1",
    valid_values=("us-central1", "europe-west1", "asia-east1"),
    widget=Widget.OPENLIST,
)

PROVIDER_PROPERTIES = (REGION,)

# Template

IMAGE = ConfigurationProperty(
    config_key="imageId",
    name="Image Alias or URL",
    description="The image alias from plugin configuration or a full image URL.",
    valid_values=("centos6", "rhel6"),
    required=True,
    widget=Widget.OPENLIST,
)

TYPE = ConfigurationProperty(
    config_key="type",
    name="Machine Type",
    description=(
        "The machine type.<br />"
        + MORE_INFO.format(url="https://cloud.google.com/compute/docs/machine-types")
    ),
    valid_values=(
        "f1-micro", "g1-small",
        "n1-standard-1", "n1-standard-2", "n1-standard-4", "n1-standard-8",
        "n1-standard-16", "n1-standard-32",
        "n1-highcpu-2", "n1-highcpu-4", "n1-highcpu-8", "n1-highcpu-16", "n1-highcpu-32",
        "n1-highmem-2", "n1-highmem-4", "n1-highmem-8", "n1-highmem-16", "n1-highmem-32",
    ),
    required=True,
    widget=Widget.OPENLIST,
)

NETWORK_NAME = ConfigurationProperty(
    config_key="networkName",
    name="Network Name",
    description="The network identifier.",
    default_value="default",
)

NETWORK_PROJECT = ConfigurationProperty(
    config_key="networkProject",
    name="Network Project",
    description="The project the network belongs to.",
)

ASSIGN_EXTERNAL_IPS = ConfigurationProperty(
    config_key="assignExternalIPs",
    name="Assign External IPs",
    description="Assign external IP addresses to created instances.",
    default_value="true",
    widget=Widget.CHECKBOX,
)

INSTANCE_TAGS = ConfigurationProperty(
    config_key="instanceTags",
    name="Tags",
    description="Comma separated network tags applied to created instances.",
)

SUBNETWORK_NAME = ConfigurationProperty(
    config_key="subnetworkName",
    name="Subnetwork Name",
    description="The subnetwork identifier.",
)

ZONE = ConfigurationProperty(
    config_key="zone",
    name="Zone",
    description=(
        "The zone to target for deployment. "
        "The zone you specify must be contained within the region you selected."
    ),
    required=True,
    widget=Widget.OPENLIST,
)

BOOT_DISK_TYPE = ConfigurationProperty(
    config_key="bootDiskType",
    name="Boot Disk Type",
    description="The type of boot disk to create (SSD, Standard).",
    default_value="SSD",
    valid_values=("SSD", "Standard"),
    widget=Widget.LIST,
)

BOOT_DISK_SIZE_GB = ConfigurationProperty(
    config_key="bootDiskSizeGb",
    name="Boot Disk Size (GB)",
    description="The size of the boot disk in GB.",
    default_value="60",
    widget=Widget.NUMBER,
)

DATA_DISK_COUNT = ConfigurationProperty(
    config_key="dataDiskCount",
    name="Data Disk Count",
    description="The number of data disks to create.",
    default_value="2",
    widget=Widget.NUMBER,
)

DATA_DISK_TYPE = ConfigurationProperty(
    config_key="dataDiskType",
    name="Data Disk Type",
    description="The type of data disks to create (LocalSSD, SSD, Standard).",
    default_value="LocalSSD",
    valid_values=("LocalSSD", "SSD", "Standard"),
    widget=Widget.LIST,
)

# Ignored when dataDiskType is LocalSSD.
DATA_DISK_SIZE_GB = ConfigurationProperty(
    config_key="dataDiskSizeGb",
    name="Data Disk Size",
    description=(
        "The size of the data disks in GB. "
        "If you've selected LocalSSD data disks, must be exactly 375."
    ),
    default_value="375",
    widget=Widget.NUMBER,
)

# Ignored unless dataDiskType is LocalSSD.
LOCAL_SSD_INTERFACE_TYPE = ConfigurationProperty(
    config_key="localSSDInterfaceType",
    name="Local SSD Interface Type",
    description="The Local SSD interface type (SCSI or NVME).",
    default_value="SCSI",
    valid_values=("SCSI", "NVME"),
    widget=Widget.LIST,
)

USE_PREEMPTIBLE_INSTANCES = ConfigurationProperty(
    config_key="usePreemptibleInstances",
    name="Use Preemptible Instances",
    description="Whether to use preemptible virtual machine instances.",
    default_value="false",
    widget=Widget.CHECKBOX,
)

TEMPLATE_PROPERTIES = (
    INSTANCE_NAME_PREFIX,
    IMAGE,
    TYPE,
    NETWORK_NAME,
    NETWORK_PROJECT,
    ASSIGN_EXTERNAL_IPS,
    INSTANCE_TAGS,
    SUBNETWORK_NAME,
    ZONE,
    BOOT_DISK_TYPE,
    BOOT_DISK_SIZE_GB,
    DATA_DISK_COUNT,
    DATA_DISK_TYPE,
    DATA_DISK_SIZE_GB,
    LOCAL_SSD_INTERFACE_TYPE,
    USE_PREEMPTIBLE_INSTANCES,
)

# Display

IMAGE_ID = DisplayProperty("imageId", "Image ID", "The ID of the image used to launch the instance.")
INSTANCE_ID = DisplayProperty("instanceId", "Instance ID", "The ID of the instance.")
INSTANCE_TYPE = DisplayProperty("instanceType", "Machine type", "The machine type of the instance.")
LAUNCH_TIME = DisplayProperty("launchTime", "Launch time", "The time the instance was launched.")
PRIVATE_IP_ADDRESS = DisplayProperty(
    "privateIpAddress", "Internal IP", "The private IP address assigned to the instance.",
)
PUBLIC_IP_ADDRESS = DisplayProperty(
    "publicIpAddress", "External IP", "The public IP address assigned to the instance.",
)

DISPLAY_PROPERTIES = (
    IMAGE_ID,
    INSTANCE_ID,
    INSTANCE_TYPE,
    LAUNCH_TIME,
    PRIVATE_IP_ADDRESS,
    PUBLIC_IP_ADDRESS,
)
