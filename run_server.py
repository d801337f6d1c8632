"""
Run the relay with the listen address from settings.

Equivalent to ``letmeknow serve`` without command line overrides.
"""

if __name__ == "__main__":
    import uvicorn

    from letmeknow.settings import app_settings

    uvicorn.run(
        "letmeknow:application",
        factory=True,
        host=app_settings.host,
        port=app_settings.port,
    )
