from src.academy_access.academy_access import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
