"""Chat Gateway - multi-provider LLM completion gateway with ordered fallback.

Usage:
    from chat_gateway.http_server import app
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

Or from the command line:
    chat-gateway serve
"""

__version__ = "0.1.0"
