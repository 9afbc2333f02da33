"""
Pharmacy Guard API - Standalone Entry Point
===========================================
Run this to start the API server (and its ingestion scheduler) independently.

For integration into a parent Flask app, see pharmacy_guard/__init__.py for:
  - init_pharmacy_module()
  - create_pharmacy_blueprint()
"""
from pharmacy_guard import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
