import os
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "evm_dealer.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info"
    )
