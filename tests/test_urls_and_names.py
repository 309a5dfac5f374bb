from __future__ import annotations

import pytest

from director_google.names import (
    application_name_version_tag,
    decorate_instance_name,
    sql_region_to_compute_region,
)
from director_google.urls import (
    build_global_url,
    build_regional_url,
    build_zonal_url,
    get_local_name,
    get_project,
)

pytestmark = [pytest.mark.xdist_group("unit")]

IMAGE_URL = (
    "https://www.googleapis.com/compute/v1/projects/centos-cloud/global/images/centos-6-v20160526"
)


class TestUrls:
    def test_local_name(self):
        assert get_local_name(IMAGE_URL) == "centos-6-v20160526"

    def test_local_name_of_nothing(self):
        assert get_local_name(None) is None
        assert get_local_name("") is None

    def test_project(self):
        assert get_project(IMAGE_URL) == "centos-cloud"

    def test_project_of_malformed_url(self):
        with pytest.raises(ValueError, match="Malformed resource url"):
            get_project("https://www.googleapis.com/compute/v1/images/foo")

    def test_zonal_url(self):
        assert build_zonal_url("my-project", "us-central1-f", "machineTypes", "n1-standard-1") == (
            "https://www.googleapis.com/compute/v1/projects/my-project/zones/us-central1-f"
            "/machineTypes/n1-standard-1"
        )

    def test_regional_url(self):
        assert build_regional_url("my-project", "us-central1", "subnetworks", "sub") == (
            "https://www.googleapis.com/compute/v1/projects/my-project/regions/us-central1"
            "/subnetworks/sub"
        )

    def test_global_url(self):
        assert build_global_url("my-project", "networks", "default") == (
            "https://www.googleapis.com/compute/v1/projects/my-project/global/networks/default"
        )


class TestNames:
    def test_decorate_instance_name(self):
        assert decorate_instance_name("director", "abc-123") == "director-abc-123"

    def test_application_tag(self):
        assert application_name_version_tag("plugin", "2.0.0") == "plugin/2.0.0"

    def test_region_alias(self):
        aliases = {"us-central": "us-central1"}
        assert sql_region_to_compute_region("us-central", aliases) == "us-central1"
        assert sql_region_to_compute_region("europe-west1", aliases) == "europe-west1"
