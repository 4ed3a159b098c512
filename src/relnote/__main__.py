from relnote.cli.app import app

app()
