import logging
import os
import uuid

import httpx
from fastapi import FastAPI
from pydantic import BaseModel

from models import ApiErr

logger = logging.getLogger(__name__)

# environment variables
LEX = os.getenv("LEX_URL", "http://lexer-svc:8000/lex")
PARSE = os.getenv("PARSE_URL", "http://parser-svc:8000/interpret")  # parser forwards to the evaluator

app = FastAPI(title="gateway")

@app.get("/healthz")
def healthz():
    return {"ok": True}

class RunReq(BaseModel):
    source: str

@app.post("/run")
async def run(req: RunReq):
    rid = str(uuid.uuid4())
    hdr = {"X-Request-Id": rid}

    async with httpx.AsyncClient(timeout=10) as c:
        # Step 1: Lexical analysis
        try:
            r = await c.post(LEX, json={"source": req.source}, headers=hdr)
            r.raise_for_status()
            lex = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[%s] lexer unreachable: %s", rid, e)
            return ApiErr(phase="lex", code="E_FORWARD_LEXER", msg=f"Failed to contact lexer: {e}")
        if not lex.get("ok"):
            return lex

        # Step 2: Send tokens to parser (/interpret), which hands the tree to the evaluator
        try:
            r = await c.post(PARSE, json={"tokens": lex["data"]}, headers=hdr)
            r.raise_for_status()
            result = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[%s] parser unreachable: %s", rid, e)
            return ApiErr(phase="parse", code="E_FORWARD_PARSER", msg=f"Failed to contact parser: {e}")
        logger.debug("[%s] run finished ok=%s", rid, result.get("ok"))
        return result
