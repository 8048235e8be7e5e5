from build_log.cli.app import app

app()
