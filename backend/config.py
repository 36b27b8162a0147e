import os
import tempfile
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///scavenger.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = int(os.environ.get('PORT', '4000'))
    # Shared secret every player logs in with
    APP_PASSWORD = os.environ.get('APP_PASSWORD')
    # Image classification (Azure AI Vision). Missing values disable matching.
    AZURE_VISION_ENDPOINT = os.environ.get('AZURE_VISION_ENDPOINT', '')
    AZURE_VISION_KEY = os.environ.get('AZURE_VISION_KEY', '')
    VISION_MATCH_THRESHOLD = float(os.environ.get('VISION_MATCH_THRESHOLD', '0.6'))
    VISION_TIMEOUT_SEC = float(os.environ.get('VISION_TIMEOUT_SEC', '10'))
    # Round transition timers (seconds)
    INTERMISSION_SEC = float(os.environ.get('INTERMISSION_SEC', '10'))
    SKIP_GRACE_SEC = float(os.environ.get('SKIP_GRACE_SEC', '3'))
    LEADERBOARD_WRITE_ATTEMPTS = int(os.environ.get('LEADERBOARD_WRITE_ATTEMPTS', '3'))
    LEADERBOARD_RETRY_DELAY_SEC = float(os.environ.get('LEADERBOARD_RETRY_DELAY_SEC', '0.05'))
    # Uploaded photos only live here until they are classified
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(tempfile.gettempdir(), 'scavenger-uploads')
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_UPLOAD_MB', '16')) * 1024 * 1024
    CLIENT_BUILD_PATH = os.environ.get('CLIENT_BUILD_PATH') or os.path.join(BASE_DIR, '..', 'client', 'dist')
    # Optional override of the item catalog (list of Item)
    ITEMS = None
