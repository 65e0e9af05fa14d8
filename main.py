from routefeed.main import app
