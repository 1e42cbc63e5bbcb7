import os
import logging
from dotenv import load_dotenv

# Load Environment Variables BEFORE other imports might need them
load_dotenv()
print(f"--- CONFIG DEBUG: DB_BACKEND={os.getenv('DB_BACKEND', 'local')} ---")
print(f"--- CONFIG DEBUG: GOOGLE_API_KEY={'set' if os.getenv('GOOGLE_API_KEY') else 'missing'} ---")

from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_login import LoginManager

from database.db_connector import configure_database
from database.models import db
from services.auth_service import load_household_user
from utils.cache import RecipeListCache, EXTENSION_KEY

logging.basicConfig(level=logging.INFO)

app = Flask(__name__)
app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-key-secret')
app.config['MAX_CONTENT_LENGTH'] = 20 * 1024 * 1024 # 20MB limit (photo imports)
app.json.ensure_ascii = False

# Database Configuration (Local SQLite vs Postgres)
configure_database(app)
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
db.init_app(app)

# Initialize Flask-Migrate
migrate = Migrate(app, db)

# Recipe list cache lives on the app, not in a module global
app.extensions[EXTENSION_KEY] = RecipeListCache()

# Initialize Flask-Login
login_manager = LoginManager()
login_manager.init_app(app)

@login_manager.user_loader
def load_user(user_id):
    return load_household_user(user_id)

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(error='Nicht authentifiziert'), 401

@app.errorhandler(413)
def request_too_large(e):
    return jsonify(error='Datei ist zu groß (max. 20 MB)'), 413

# Register Blueprints
from routes.auth_routes import auth_bp
app.register_blueprint(auth_bp)

from routes.recipe_routes import recipes_bp
app.register_blueprint(recipes_bp)

from routes.tag_routes import tags_bp
app.register_blueprint(tags_bp)

from routes.import_routes import import_bp
app.register_blueprint(import_bp)

from routes.settings_routes import settings_bp
app.register_blueprint(settings_bp)


if __name__ == '__main__':
    with app.app_context():
        db.create_all() # Ensure tables exist
    app.run(host='0.0.0.0', debug=True, port=8000)
