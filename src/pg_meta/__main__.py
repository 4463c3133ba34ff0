from pg_meta.cli.main import run

run()
