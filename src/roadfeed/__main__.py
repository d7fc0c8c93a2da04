from roadfeed.cli import main

raise SystemExit(main())
