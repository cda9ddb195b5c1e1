import os


class VirtAttrsAppCfg(object):
    """
    This is where values that are specific to a deployment should live.
    They are read from the deploy environment when the module is imported.
    """

    app = "virtattrs"

    # --- environment modes
    valid_env_label = [
        "local",  # running on a laptop
        "dev",  # a development branch running somewhere
        "test",  # CI test environment
        "qa",  # running in QA env
        "live",  # running in production env
    ]
    deploy_env_label = os.environ.get("DEPLOY_ENV", "local")
    assert (
        deploy_env_label in valid_env_label
    ), f"value of environment variable DEPLOY_ENV '{deploy_env_label}' is not recognized"

    log_level = os.environ.get("LOG_LEVEL")

    # --- record store
    # connection string for the database holding models with virtual attributes
    # NOTE: may contain a PWD so do not log
    record_store_db_url = os.environ.get(
        "RECORD_STORE_DB_URL", "sqlite+pysqlite:///:memory:"
    )
    # echo all SQL statements issued by the record store engine
    record_store_echo = os.environ.get("RECORD_STORE_ECHO", "false").lower() in [
        "1",
        "true",
        "yes",
    ]
