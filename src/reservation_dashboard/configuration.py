from pydantic_settings import BaseSettings

class Configuration(BaseSettings):
    SHEET_APP_URL: str = "http://localhost:8080/exec"
    RESERVATIONS_PROVIDER: str = "sheet"
    REQUEST_TIMEOUT: float = 30.0
    REFRESH_INTERVAL_SECONDS: float = 60.0
