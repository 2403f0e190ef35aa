import os
from dotenv import load_dotenv

# 1. Carga las variables de .env
load_dotenv()

# 2. Importa el factory desde senior_strength/__init__.py
from senior_strength import create_app

# 3. Crea la app
app = create_app()

# 4. Permite ejecutar con `python run.py` (los jobs van por `flask jobs ...`)
if __name__ == "__main__":
    debug = os.getenv("FLASK_ENV", "development") == "development"
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=debug)
