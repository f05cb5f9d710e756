"""Public tracking schemas."""

from app.modules.applications.schemas import ApplicationSummary


class TrackingResponse(ApplicationSummary):
    """An application summary as shown on the public tracking page."""

    picture_url: str | None = None
