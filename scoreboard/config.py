import os


class Config:
    HOST = os.environ.get('SCOREBOARD_HOST', '0.0.0.0')
    PORT = int(os.environ.get('SCOREBOARD_PORT', '5000'))
    # Timer polling interval (seconds); broadcasts still happen once per second at most
    TIMER_INTERVAL_SEC = float(os.environ.get('TIMER_INTERVAL_SEC', '0.2'))
    # Pending messages a viewer may fall behind by before it is disconnected
    SUBSCRIBER_QUEUE_SIZE = int(os.environ.get('SUBSCRIBER_QUEUE_SIZE', '256'))
    SAVES_DIR = os.environ.get('SAVES_DIR', 'saved')
    # Display UI served at /, controller UI at /control/ (mounted only if present)
    STATIC_DIR = os.environ.get('STATIC_DIR', 'static')
    CONTROL_DIR = os.environ.get('CONTROL_DIR', 'control')
    LOGO_FETCH_TIMEOUT_SEC = float(os.environ.get('LOGO_FETCH_TIMEOUT_SEC', '7'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    UVICORN_LOG_LEVEL = os.environ.get('UVICORN_LOG_LEVEL', 'warning')
