import logging
from typing import Any

from dynaconf import Dynaconf

logger = logging.getLogger(__name__)

DEFAULT_OUTDIR = "logmetrics.out"


settings = Dynaconf(
    includes=["settings.toml"],
    load_dotenv=True,
    merge_enabled=True,
    envvar_prefix="LOGMETRICS",
)


def get_setting(section: str, name: str, default: Any = None) -> Any:
    """
    Read `section.name` from the settings, falling back to `default`.

    Values come from settings.toml or from LOGMETRICS_<SECTION>__<NAME>
    environment variables.

    Args:
        section (str): The settings section, e.g. "aws".
        name (str): The key inside the section, e.g. "region".
        default (Any): Returned when the setting is not defined.
    """
    section_settings = settings.get(section.upper(), None)
    if section_settings is None:
        return default
    value = section_settings.get(name, None)
    if value is None:
        logger.debug("Setting %s.%s not configured, using default.", section, name)
        return default
    return value
