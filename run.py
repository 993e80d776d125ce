"""Point d'entrée principal de l'application Wine Cellar."""

import os

from app import create_app

app = create_app()

if __name__ == '__main__':
    debug_env = os.environ.get('FLASK_DEBUG', '')
    debug = debug_env.lower() in {'1', 'true', 'yes', 'on'}
    port = int(os.environ.get('PORT', '8080'))
    app.run(host='0.0.0.0', port=port, debug=debug)
