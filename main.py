#!/usr/bin/env python3
"""
Main entry point for the Membership Fee Management backend
"""
import os
from app import create_app

app = create_app('production' if os.environ.get('FLASK_ENV') == 'production' else 'development')

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))

    print("🏛️ Starting Membership Fee Management backend...")
    print(f"📡 Running on port {port}")

    app.run(host='0.0.0.0', port=port, debug=False)
