from ytgate.app import create_app
from ytgate.config import Settings

settings = Settings.from_env()
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("index:app", host=settings.host, port=settings.port)
