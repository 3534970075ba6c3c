import json
import logging
import sys
from pathlib import Path

from loguru import logger

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

# Fields services bind on order, payment and catalog events
BUSINESS_FIELDS = (
    "order_id",
    "user_id",
    "admin_id",
    "payment_method",
    "product_id",
    "total_amount",
    "old_status",
    "new_status",
)

FMT_PLAIN = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def _plain_format(record) -> str:
    """Plain line plus ``key=value`` for whichever business fields were bound."""
    fields = " ".join(
        f"{key}={{extra[{key}]}}" for key in BUSINESS_FIELDS if key in record["extra"]
    )
    suffix = f" | <magenta>{fields}</magenta>" if fields else ""
    return FMT_PLAIN + suffix + "\n{exception}"


def json_record(record) -> str:
    """One JSON object per line with the business fields lifted to the top level."""
    extra = record["extra"]
    payload = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "request_id": extra.get("request_id", "-"),
        "logger": f"{record['name']}:{record['function']}:{record['line']}",
    }
    for key in BUSINESS_FIELDS:
        if key in extra:
            payload[key] = extra[key]
    context = {
        key: value
        for key, value in extra.items()
        if key not in BUSINESS_FIELDS and key not in ("request_id", "json")
    }
    if context:
        payload["context"] = context
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return json.dumps(payload, default=str)


def _patch_record(record) -> None:
    record["extra"].setdefault("request_id", "-")
    record["extra"]["json"] = json_record(record)


def configure_logging():
    main_config = get_config()
    cfg = main_config.logging
    env = main_config.app.environment
    is_json_file = bool(cfg.file) and cfg.format == "json"

    # 0) Reset Loguru and guarantee a default request_id
    logger.remove()
    logger.configure(
        extra={"request_id": "-"},
        patcher=_patch_record if is_json_file else None,
    )

    backtrace_on = env != "production"
    diagnose_on = env != "production"

    # 1) Console: always colorized, human-readable
    logger.add(
        sys.stderr,
        level=cfg.level,
        format=_plain_format,
        colorize=True,
        backtrace=backtrace_on,
        diagnose=diagnose_on,
        enqueue=False,
    )

    # 2) File: JSON lines or plain
    if cfg.file:
        path = Path(cfg.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            level=cfg.level,
            format="{extra[json]}" if is_json_file else _plain_format,
            colorize=False,
            rotation=f"{cfg.max_size_mb} MB",
            retention=cfg.backup_count,
            compression="zip",
            enqueue=True,
            backtrace=backtrace_on,
            diagnose=diagnose_on,
        )

    # 3) Intercept stdlib logging and forward into Loguru
    class InterceptHandler(logging.Handler):
        """Redirect standard 'logging' records to Loguru, with selective drops."""

        def emit(self, record: logging.LogRecord) -> None:
            # Request logging middleware already covers access logs
            if record.name == "uvicorn.access":
                return

            # The middleware logs exceptions with request context
            if record.name == "uvicorn.error" and record.levelno >= logging.ERROR:
                return

            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            logger.opt(depth=2, exception=record.exc_info).bind(
                logger_name=record.name
            ).log(level, record.getMessage())

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in list(logging.root.manager.loggerDict.keys()):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True

    # 4) Tune noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)

    logger.bind(
        app_level=cfg.level,
        app_format=cfg.format,
        app_file=cfg.file,
        environment=env,
    ).info("Logging configured")


def log_store_configuration(config: ConfigData | None = None) -> None:
    """Report the pricing, payment and delivery settings the store starts with."""
    config = config or get_config()
    store = config.store
    payment = config.payment
    logger.bind(
        store=store.name,
        currency=store.currency_symbol,
        tax_rate=store.tax_rate,
        shipping_fee=store.shipping_fee,
        free_shipping_threshold=store.free_shipping_threshold,
        cod_fee=store.cod_fee,
        categories=len(store.categories),
        wallet_number_set=bool(payment.mobile_wallet_number),
        bank=payment.bank_account.bank,
        email_provider=bool(config.email.api_url and config.email.api_key),
        email_enabled=config.email.enabled,
    ).info("Store configuration loaded")
