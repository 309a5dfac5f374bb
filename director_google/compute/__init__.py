"""Google Compute Engine resource provider."""

from director_google.compute.provider import GoogleComputeProvider

__all__ = ["GoogleComputeProvider"]
