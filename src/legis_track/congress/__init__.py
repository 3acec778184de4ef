# ABOUTME: Congress.gov integration module.
# ABOUTME: Exports the API client and its error type.

from legis_track.congress.client import CongressApiClient, CongressApiError

__all__ = ["CongressApiClient", "CongressApiError"]
