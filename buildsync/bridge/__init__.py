"""Bridge layer between buildsync and the CI provider's REST API.

Modules
-------
appveyor_client
    Wraps ``httpx.AsyncClient`` behind typed endpoint methods that return
    validated pydantic models and raise ``ProviderError`` on failure.
"""
