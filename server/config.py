from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # GitHub OAuth (user sign-in)
    github_client_id: str = ""
    github_client_secret: str = ""

    # GitHub App (repository creation)
    github_app_id: str = ""
    github_app_slug: str = ""
    github_app_private_key: str = ""
    github_app_private_key_path: str = ""

    # App
    app_secret_key: str = "change-me-in-production"
    app_base_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:5173"

    # Database
    database_path: str = "./data/stencil.db"

    # Logging
    log_level: str = "info"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Template catalog seed file
    templates_file: str = "./templates.yml"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def github_app_private_key_pem(self) -> str:
        """PEM text from the inline setting, or read from the key file."""
        if self.github_app_private_key:
            # .env files usually carry the key on one line with literal \n
            return self.github_app_private_key.replace("\\n", "\n")
        if self.github_app_private_key_path:
            path = Path(self.github_app_private_key_path)
            if path.is_file():
                return path.read_text()
        return ""

    @property
    def github_app_configured(self) -> bool:
        return bool(self.github_app_id and self.github_app_private_key_pem)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
