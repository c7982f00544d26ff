# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""
skilldex Configuration
Reads SKILLDEX_* environment variables, with .env file support for local dev
"""
from pydantic_settings import BaseSettings
import os
from dotenv import load_dotenv

# Load .env file from project root
env_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env")
load_dotenv(env_path)


class Settings(BaseSettings):
    """Engine and API settings"""

    # Environment configuration
    environment: str = os.getenv("ENVIRONMENT", "development")  # development, production, or testing
    debug: bool = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    # Skill tree: <root>/agents/*.agent.md and <root>/skills/<name>/SKILL.md
    skills_root: str = "."

    # Scanning
    scan_workers: int = 4
    max_descriptor_bytes: int = 10 * 1024 * 1024

    # Hot reload
    watch_enabled: bool = True
    debounce_seconds: float = 0.5
    watch_use_polling: bool = False  # For filesystems without native notifications
    polling_interval: float = 1.0

    # Local RPC server
    host: str = "127.0.0.1"
    port: int = 8765

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment.lower() == "development"

    class Config:
        env_prefix = "SKILLDEX_"
        env_file = env_path
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file


# Global settings instance
settings = Settings()
