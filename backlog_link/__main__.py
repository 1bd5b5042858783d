from backlog_link.main import main

raise SystemExit(main())
