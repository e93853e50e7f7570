"""
Simple development server for the Conquest Missions API.
"""

import os

import uvicorn

PORT = int(os.environ.get("PORT", "8000"))

if __name__ == "__main__":
    print(f"Serving at http://localhost:{PORT}")
    print(f"Open http://localhost:{PORT}/docs to try the API")
    uvicorn.run("conquest.api.main:app", host="127.0.0.1", port=PORT, reload=False)
