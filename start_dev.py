#!/usr/bin/env python3
"""
Footfall Forecast - Development Server Launcher

Quick start script that:
1. Checks the Python version and dependencies
2. Sets up the environment
3. Opens browser automatically
4. Starts the Flask development server

Usage:
    python start_dev.py                       # Start with default settings
    python start_dev.py --port 8080           # Use custom port
    python start_dev.py --no-browser          # Don't open browser
    python start_dev.py --sample-csv out.csv  # Write a sample dataset and exit
"""

import os
import sys
import time
import argparse
import webbrowser
import threading
from pathlib import Path

# Colors for terminal output
class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'

def print_banner():
    """Print startup banner"""
    banner = f"""
{Colors.GREEN}╔══════════════════════════════════════════════════════════════╗
║                                                                ║
║   {Colors.BOLD}Footfall Forecast{Colors.END}{Colors.GREEN}                                            ║
║   {Colors.CYAN}Daily visitor counts, trends and short-term forecasts{Colors.GREEN}        ║
║                                                                ║
╚══════════════════════════════════════════════════════════════╝{Colors.END}
"""
    print(banner)

def print_step(step_num, message, status="running"):
    """Print step with status"""
    if status == "running":
        icon = f"{Colors.YELLOW}⏳{Colors.END}"
    elif status == "done":
        icon = f"{Colors.GREEN}✓{Colors.END}"
    elif status == "skip":
        icon = f"{Colors.BLUE}→{Colors.END}"
    else:
        icon = f"{Colors.RED}✗{Colors.END}"

    print(f"  {icon} Step {step_num}: {message}")

def check_python_version():
    """Ensure Python 3.9+"""
    version = sys.version_info
    if version.major < 3 or (version.major == 3 and version.minor < 9):
        print(f"{Colors.RED}Error: Python 3.9+ required. You have {version.major}.{version.minor}{Colors.END}")
        sys.exit(1)
    return True

def check_dependencies():
    """Check if required packages are installed"""
    required = ['flask', 'flask_limiter', 'numpy']
    missing = []

    for package in required:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    return missing

def setup_environment():
    """Set up environment variables"""
    os.environ.setdefault('FLASK_APP', 'web.app:app')
    os.environ.setdefault('FLASK_DEBUG', 'True')
    os.environ.setdefault('FLASK_ENV', 'development')

def write_sample_csv(path, days=1000, seed=None):
    """Write a generated sample dataset to a CSV file"""
    sys.path.insert(0, str(Path(__file__).parent))

    from src.demo_data import generate_sample_data
    from src.forecasting import serialize_csv

    series = generate_sample_data(day_count=days, seed=seed)
    Path(path).write_text(serialize_csv(series) + "\n", encoding="utf-8")
    return len(series)

def open_browser_delayed(url, delay=2):
    """Open browser after delay"""
    def _open():
        time.sleep(delay)
        webbrowser.open(url)

    thread = threading.Thread(target=_open, daemon=True)
    thread.start()

def run_server(port=5101, host='127.0.0.1'):
    """Run the Flask development server"""
    sys.path.insert(0, str(Path(__file__).parent))

    from web.app import create_app

    app = create_app()

    print(f"\n{Colors.GREEN}{'='*60}{Colors.END}")
    print(f"{Colors.BOLD}  Server running at: {Colors.CYAN}http://{host}:{port}{Colors.END}")
    print(f"{Colors.GREEN}{'='*60}{Colors.END}\n")

    app.run(debug=True, port=port, host=host, use_reloader=True)

def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Footfall Forecast Development Server'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=5101,
        help='Port to run server on (default: 5101)'
    )
    parser.add_argument(
        '--host',
        default='127.0.0.1',
        help='Host to bind to (default: 127.0.0.1)'
    )
    parser.add_argument(
        '--no-browser',
        action='store_true',
        help='Do not open browser automatically'
    )
    parser.add_argument(
        '--sample-csv',
        metavar='PATH',
        help='Write a generated sample dataset to PATH and exit'
    )
    parser.add_argument(
        '--sample-days',
        type=int,
        default=1000,
        help='Days in the generated sample (default: 1000)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for the generated sample'
    )

    args = parser.parse_args()

    if args.sample_csv:
        count = write_sample_csv(args.sample_csv, days=args.sample_days, seed=args.seed)
        print(f"{Colors.GREEN}Wrote {count} days to {args.sample_csv}{Colors.END}")
        return

    print_banner()

    # Step 1: Check Python version
    print_step(1, "Checking Python version...", "running")
    check_python_version()
    print_step(1, f"Python {sys.version_info.major}.{sys.version_info.minor} OK", "done")

    # Step 2: Check dependencies
    print_step(2, "Checking dependencies...", "running")
    missing = check_dependencies()
    if missing:
        print_step(2, f"Missing: {', '.join(missing)} (run: pip install -e .)", "error")
        sys.exit(1)
    print_step(2, "All dependencies installed", "done")

    # Step 3: Set up environment
    print_step(3, "Setting up environment...", "running")
    setup_environment()
    if args.seed is not None:
        os.environ.setdefault('SAMPLE_SEED', str(args.seed))
    print_step(3, "Environment configured", "done")

    # Step 4: Open browser
    url = f"http://{args.host}:{args.port}"
    if not args.no_browser:
        print_step(4, f"Opening browser to {url}...", "running")
        open_browser_delayed(url, delay=2)
        print_step(4, "Browser will open shortly", "done")
    else:
        print_step(4, "Browser auto-open disabled", "skip")

    # Step 5: Start server
    print_step(5, "Starting development server...", "running")

    try:
        run_server(port=args.port, host=args.host)
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Server stopped.{Colors.END}")
    except Exception as e:
        print(f"\n{Colors.RED}Server error: {e}{Colors.END}")
        sys.exit(1)

if __name__ == '__main__':
    main()
