"""
Wrapper script for running the relay under a profiler or process manager.
"""

if __name__ == "__main__":
    import uvicorn

    from relay.settings import app_settings

    uvicorn.run("relay:app", host=app_settings.HOST, port=app_settings.PORT)
