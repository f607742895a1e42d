import logging

from flask import Flask
from config import Config

def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # import and register blueprints
    from routes import prereq_bp

    app.register_blueprint(prereq_bp)

    return app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
