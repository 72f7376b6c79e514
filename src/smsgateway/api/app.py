"""Default application, configured from the environment."""

from smsgateway.api.factory import create_app

app = create_app()
