from pupil.repl import main

raise SystemExit(main())
