"""
API entry point.

Run with:
    python -m exchange_ledger
"""

import uvicorn

from exchange_ledger.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "exchange_ledger.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
