#!/usr/bin/env python3
"""
Setup verification script for clipline
Run this to verify ffmpeg, Python packages and configuration are in place
"""

import os
import shutil
import subprocess
import sys
from pathlib import Path


def print_header(text):
    """Print a formatted header"""
    print(f"\n{'='*60}")
    print(f"  {text}")
    print(f"{'='*60}")


def print_status(check, status, details=""):
    """Print status with emoji"""
    emoji = "✅" if status else "❌"
    print(f"{emoji} {check}")
    if details:
        print(f"   → {details}")


def check_python_version():
    """Check Python version"""
    print_header("PYTHON VERSION CHECK")

    version = sys.version_info
    required = (3, 10)
    current = f"{version.major}.{version.minor}.{version.micro}"

    is_valid = (version.major, version.minor) >= required
    print_status(f"Python version: {current}", is_valid, f"Required: {required[0]}.{required[1]}+")
    return is_valid


def check_binary(name, env_var):
    """Check that an ffmpeg tool runs"""
    binary = os.environ.get(env_var, name)
    path = shutil.which(binary)
    if not path:
        print_status(f"{name} binary", False, f"'{binary}' not on PATH (or set {env_var})")
        return False

    try:
        result = subprocess.run([binary, '-version'], capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired) as e:
        print_status(f"{name} binary", False, f"Error: {e}")
        return False

    first_line = result.stdout.splitlines()[0] if result.stdout else "unknown version"
    print_status(f"{name}: {first_line}", result.returncode == 0, path)
    return result.returncode == 0


def check_ffmpeg():
    """Check ffmpeg and ffprobe"""
    print_header("FFMPEG CHECK")
    ffmpeg_ok = check_binary('ffmpeg', 'FFMPEG_BINARY')
    ffprobe_ok = check_binary('ffprobe', 'FFPROBE_BINARY')
    if not (ffmpeg_ok and ffprobe_ok):
        print("   Install FFmpeg: https://ffmpeg.org/download.html")
    return ffmpeg_ok and ffprobe_ok


def check_dependencies():
    """Check required dependencies"""
    print_header("DEPENDENCY CHECK")

    required_packages = [
        ('ffmpeg', 'ffmpeg-python'),
        ('rich', 'rich'),
        ('pydantic', 'pydantic'),
        ('yaml', 'PyYAML'),
        ('dotenv', 'python-dotenv'),
    ]

    missing_packages = []

    for package_name, pip_name in required_packages:
        try:
            __import__(package_name)
            print_status(f"{package_name}", True)
        except ImportError:
            print_status(f"{package_name}", False, f"Run: pip install {pip_name}")
            missing_packages.append(pip_name)

    if missing_packages:
        print(f"\n📦 Missing packages: {', '.join(missing_packages)}")
        print(f"💡 Install all: pip install {' '.join(missing_packages)}")

    return len(missing_packages) == 0


def check_config_file():
    """Check configuration file"""
    print_header("CONFIGURATION CHECK")

    config_path = Path("configs/config.yaml")
    if not config_path.exists():
        print_status("Config file exists", False, "configs/config.yaml not found")
        return False

    try:
        from clipline.utils.config import Config

        config = Config.load(str(config_path))
        print_status("Config loading", True)
        render = config.render
        print_status(f"Render: {render.width}x{render.height} @ {render.fps:g} fps, {render.encoder}", True)

        for dir_path in (config.paths.output, config.paths.temp, config.paths.logs):
            exists = Path(dir_path).exists()
            print_status(f"Directory: {dir_path}", True, "" if exists else "will be created on first run")
        return True

    except Exception as e:
        print_status("Config file validation", False, f"Error: {e}")
        return False


def main():
    """Main setup check function"""
    print("🎬 clipline - Setup Verification")
    print("=" * 60)

    checks = [
        ("Python Version", check_python_version),
        ("FFmpeg", check_ffmpeg),
        ("Dependencies", check_dependencies),
        ("Configuration", check_config_file),
    ]

    results = []

    for check_name, check_func in checks:
        try:
            result = check_func()
            results.append((check_name, result))
        except Exception as e:
            print(f"❌ {check_name} failed with error: {e}")
            results.append((check_name, False))

    print_header("VERIFICATION RESULTS")

    passed = sum(1 for _, result in results if result)
    total = len(results)

    for check_name, result in results:
        status = "✅ PASS" if result else "❌ FAIL"
        print(f"{status} {check_name}")

    print(f"\nOVERALL: {passed}/{total} checks passed")

    if passed == total:
        print("🎉 SETUP COMPLETE! Try: clipline --audio song.mp3 --clip intro.mp4:0:5 --plan-only")
    else:
        print("🔧 SETUP NEEDED! Please address the failed checks above.")

    return passed == total


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
