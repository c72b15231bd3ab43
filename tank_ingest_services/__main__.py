from tank_ingest_services.ingest_api.cli import main

main()
