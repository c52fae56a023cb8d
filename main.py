import os

import uvicorn


def main() -> None:
    port = int(os.getenv("PORT", 8765))
    uvicorn.run("quantum_jobs.api:create_app", factory=True, host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    main()
