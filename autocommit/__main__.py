from autocommit.cli.main import run

run()
