from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# What happens when a collection that still has notes is deleted: "cascade" or "reject"
	collection_delete_policy: str = Field(default="cascade", validation_alias="COLLECTION_DELETE_POLICY")

	# Quiz defaults
	quiz_question_count: int = Field(default=10, validation_alias="QUIZ_QUESTION_COUNT")
	quiz_options_per_question: int = Field(default=3, validation_alias="QUIZ_OPTIONS_PER_QUESTION")
	recent_sessions_limit: int = Field(default=7, validation_alias="RECENT_SESSIONS_LIMIT")

	# Periodic snapshot/purge loop (0 disables the loop, startup run still happens)
	maintenance_interval_hours: int = Field(default=24, validation_alias="MAINTENANCE_INTERVAL_HOURS")

	# Dictionary lookup provider
	dict_api_url: str = Field(default="https://dictionary.yandex.net/api/v1/dicservice.json", validation_alias="DICT_API_URL")
	dict_api_key: str | None = Field(default=None, validation_alias="DICT_API_KEY")
	dict_api_timeout: float = Field(default=10.0, validation_alias="DICT_API_TIMEOUT")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
