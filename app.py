import os

from dotenv import load_dotenv

load_dotenv()

from cluster_hub import create_app  # noqa: E402

app = create_app()


if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    app.run(host='0.0.0.0', port=port, debug=os.getenv('FLASK_DEBUG', '0') == '1')
