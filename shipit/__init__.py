"""shipit - build and deploy Rust binaries to Linux targets over SSH."""

__version__ = "1.0.0"
