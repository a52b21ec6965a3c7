from typing import Optional

from pydantic import BaseModel, ValidationError

class SettingsSchema(BaseModel):
    db_path: str = "workout.db"
    db_url: Optional[str] = None
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"
    timeout: float = 5.0

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
