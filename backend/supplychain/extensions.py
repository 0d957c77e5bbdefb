# Overview: Flask extension instances shared by the ledger models, services and CLI.

# backend/supplychain/extensions.py
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# One session per app context; each ledger command commits or rolls it back
db = SQLAlchemy()
migrate = Migrate(compare_type=True)
