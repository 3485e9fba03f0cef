#!filepath: pbc_stage/config/server_config.py
from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=3000, gt=0, lt=65536)
    debug: bool = False
