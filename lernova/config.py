import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_allow_origins: tuple[str, ...] = _env_list("CORS_ALLOW_ORIGINS", "*")
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("ALGORITHM", "HS256")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "authenticated")
    smtp_host: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "465"))
    smtp_timeout_seconds: float = float(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))
    smtp_local_name: str = os.getenv("SMTP_LOCAL_NAME", "localhost")
    gmail_user: str = os.getenv("GMAIL_USER", "")
    gmail_app_password: str = os.getenv("GMAIL_APP_PASSWORD", "")
    mail_sender_name: str = os.getenv("MAIL_SENDER_NAME", "Lernova")
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "600"))
    otp_email_subject: str = os.getenv(
        "OTP_EMAIL_SUBJECT", "Your Lernova Verification Code"
    )
    esewa_secret_key: str = os.getenv("ESEWA_SECRET_KEY", "")
    esewa_product_code: str = os.getenv("ESEWA_PRODUCT_CODE", "EPAYTEST")
    esewa_payment_url: str = os.getenv(
        "ESEWA_PAYMENT_URL", "https://rc-epay.esewa.com.np/api/epay/main/v2/form"
    )
    khalti_secret_key: str = os.getenv("KHALTI_SECRET_KEY", "")
    khalti_base_url: str = os.getenv("KHALTI_BASE_URL", "https://a.khalti.com/api/v2")
    khalti_timeout_seconds: float = float(os.getenv("KHALTI_TIMEOUT_SECONDS", "10"))
    site_url: str = os.getenv("SITE_URL", "http://localhost:8080")
    order_fanout_workers: int = int(os.getenv("ORDER_FANOUT_WORKERS", "8"))


settings = Settings()
