"""Run the gateway: python -m smsgateway"""

import uvicorn

from smsgateway.settings import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run("smsgateway.api.app:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
