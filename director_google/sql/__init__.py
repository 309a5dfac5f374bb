"""Google Cloud SQL resource provider."""

from director_google.sql.provider import GoogleCloudSQLProvider

__all__ = ["GoogleCloudSQLProvider"]
