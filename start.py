import uvicorn

from splitledger import config

if __name__ == "__main__":
    # Proxy headers ensure correct client IPs/host when behind a reverse proxy
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=config.PORT,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
