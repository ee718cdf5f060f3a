from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from pathlib import Path
import os


load_dotenv()


class Settings(BaseSettings):
    app_name: str = "Chain of Custody Ledger"
    debug: bool = False
    database_url: str = "sqlite:///./custody.db"
    host: str = "127.0.0.1"
    port: int = 8000
    secret_key: str = ""
    caller_token_expire_minutes: int = 15
    allowed_hosts: str = ""
    static_dir: Path = Path(__file__).parent.parent.parent / "static"
    public_url: str = "http://localhost:8000"
    log_file: str = "logs/application.log"

    # Principals wired in at start-up
    root_principal: str = "root"
    control_workflow_principal: str = "service:control-workflow"
    token_principal: str = "service:provenance-token"

    # Token collection
    token_name: str = "Cotton"
    token_symbol: str = "CT"


settings = Settings()

if not settings.secret_key:
    raise RuntimeError("Secret key not configured.")


os.makedirs(settings.static_dir, exist_ok=True)
