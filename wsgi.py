# ==============================================================================
# WSGI Entry Point - for Gunicorn in production
# ==============================================================================
# Entry point for WSGI servers such as Gunicorn.
#
# USAGE:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# PROJECT LAYOUT:
#   repo_root/           <- Working directory (on sys.path automatically)
#   ├── wsgi.py          <- This file
#   ├── pyproject.toml
#   └── pos_terminal/    <- Python package
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# With this layout absolute imports work WITHOUT touching sys.path:
#   from pos_terminal.main import create_app  ✓
# ==============================================================================

from pos_terminal.main import create_app

app = create_app()

# ==============================================================================
# ENTRY POINT
# ==============================================================================
# 'app' is exported for Gunicorn:
#   gunicorn wsgi:app
#
# Local development:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=True, host='127.0.0.1', port=5000)
