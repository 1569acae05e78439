from clearcli.cli import main

raise SystemExit(main())
