from pgmigrate.cli.app import app

app()
