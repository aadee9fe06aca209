import os
import sys
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
BACKEND_DIR = Path(__file__).resolve().parent

_found_env = find_dotenv(usecwd=True)
if _found_env:
    load_dotenv(_found_env, override=False)
else:
    for candidate in (ROOT_DIR / ".env", BACKEND_DIR / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)
            break

# --- WINDOWS EVENT-LOOP PATCH --------------------------------------------- #
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdfund.core.logging import log, configure_console_log
from crowdfund.core.contract_core.contract_config import ContractConfig
from crowdfund.core.contract_core.event_listener import ContractEventListener
from crowdfund.routes.contract_api import router as contract_router, broker
from crowdfund.routes.transactions_api import router as transactions_router

configure_console_log(debug=os.getenv("CROWDFUND_DEBUG") == "1")


@asynccontextmanager
async def lifespan(app: FastAPI):
    listener = None
    cfg = ContractConfig.from_env()
    log.banner(f"Crowdfund relay on {cfg.chain_name} ({cfg.chain_id})", source="App")
    log.print_explorer_link(cfg.explorer_url, "address", cfg.contract_address, source="App")
    if os.getenv("CROWDFUND_DISABLE_LISTENER") != "1":
        listener = ContractEventListener(cfg, broker)
        listener.start()
        log.info(f"Chain listener started for {cfg.contract_address}", source="App")
    app.state.listener = listener
    try:
        yield
    finally:
        if listener is not None:
            await listener.stop()


# --------------------------------------------------------------------------
# 1) Instantiate the FastAPI application before wiring any routers
# --------------------------------------------------------------------------
app = FastAPI(title="Crowdfund API", version="v1", lifespan=lifespan)

# --------------------------------------------------------------------------
# 2) Configure middleware
# --------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "*",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --------------------------------------------------------------------------
# 3) Include routers only after the app has been created
# --------------------------------------------------------------------------
app.include_router(contract_router)
app.include_router(transactions_router)


@app.get("/api/status")
async def status():
    listener = getattr(app.state, "listener", None)
    return {
        "status": "FastAPI backend online 🚀",
        "chainListener": bool(listener and listener.running),
        "sseConnections": broker.connection_count(),
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("crowdfund.crowdfund_backend_app:app", host="127.0.0.1", port=5000, reload=True)
