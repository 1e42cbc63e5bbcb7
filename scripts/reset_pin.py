import sys
import os
import getpass

# Add parent directory to path to import app and models
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app, db
from services.auth_service import set_pin, validate_new_pin

def reset_pin():
    """Sets a new household PIN from the shell (forgotten PIN)."""
    with app.app_context():
        db.create_all()
        print("--- Reset Household PIN ---")

        pin = getpass.getpass("New PIN: ")
        confirm_pin = getpass.getpass("Confirm PIN: ")

        if pin != confirm_pin:
            print("❌ Error: PINs do not match.")
            return

        error = validate_new_pin(pin)
        if error:
            print(f"❌ Error: {error}")
            return

        try:
            set_pin(pin)
            print("✅ PIN updated. Existing sessions stay logged in.")
        except Exception as e:
            print(f"❌ Error saving PIN: {e}")
            db.session.rollback()

if __name__ == "__main__":
    reset_pin()
